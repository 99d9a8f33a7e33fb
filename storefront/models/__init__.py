from storefront.models.user import User, UserRole
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.order import Order
from storefront.models.entitlement import Entitlement

# add ALL models here
