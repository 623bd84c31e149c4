from delivery.db.models.restaurant import RestaurantModel
from delivery.db.models.catalog import CategoryModel, ProductModel
