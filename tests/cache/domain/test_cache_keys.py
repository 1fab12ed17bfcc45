import pytest

from marketplace.cache import keys
from marketplace.cache.keys import CacheKey, CachePurpose


class TestCacheKeys:
    def test_render(self):
        assert keys.buyer_order("buyer-1", "ord-1").render() == "buyer-order:buyer-1:ord-1"
        assert keys.seller_order_list("seller-a").render() == "seller-order-list:seller-a"
        assert str(keys.sales_report("seller-a", "store-a")) == "sales-report:seller-a:store-a"

    def test_purposes_never_collide(self):
        assert keys.buyer_order_list("x").render() != keys.seller_order_list("x").render()

    def test_separator_in_identity_is_escaped(self):
        assert keys.buyer_order("a:b", "c").render() != keys.buyer_order("a", "b:c").render()

    def test_wrong_arity(self):
        with pytest.raises(ValueError, match="2 identity part"):
            CacheKey(CachePurpose.BUYER_ORDER, ("buyer-1",))

    @pytest.mark.parametrize("part", ["", None])
    def test_empty_identity_part(self, part):
        with pytest.raises(ValueError, match="empty identity part"):
            CacheKey(CachePurpose.SELLER_ORDER_LIST, (part,))
