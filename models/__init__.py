from models.user import User
from models.userRole import UserRole
from models.profile import Profile
from models.vendor import Vendor
from models.category import Category
from models.product import Product
from models.order import Order
from models.orderItem import OrderItem
from models.payment import Payment
from models import orderTotals  # noqa: F401  registers the order total flush hooks
