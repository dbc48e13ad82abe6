"""CosmosMind: cognitive adaptation and scoring engine."""

from cosmosmind.config import SERVER_VERSION as __version__
