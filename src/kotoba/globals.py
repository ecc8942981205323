from .catalog import CatalogManager
from .config import settings

catalog_manager = CatalogManager(settings.CATALOG_FILE)
