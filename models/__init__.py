from models.users import User
from models.categories import Category, category_product
from models.products import Product
from models.product_images import ProductImage

__all__ = ["User", "Category", "category_product", "Product", "ProductImage"]
