from . import crx
from . import aplate

# Export the main Plate class for easy access
from .aplate import Plate
