from .crud_user import user, user_category
from .crud_product import product, modification, price_type, product_price, section
from .crud_discount import discount, discount_group
from .crud_order import order, order_item, create_order_item, get_order_item
