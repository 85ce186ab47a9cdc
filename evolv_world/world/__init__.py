"""World systems - climate, terrain, tiles, seasons, spatial index."""

from .climate import Climate
from .tile import Tile, ArableTile, NonArableTile
from .terrain import Terrain, PerlinNoise
from .seasons import SeasonTracker, get_season, get_season_index
from .spatial_index import SoftBodiesInPositions
