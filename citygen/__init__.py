from citygen.city_generator import CityGenerator, CityLayout
from citygen.config import CityConfig, ConfigError
from citygen.grid import Grid, Tile
