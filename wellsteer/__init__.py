from . import (
    camera,
    config,
    curve,
    logging_config,
    quality,
    station,
    survey,
    target,
    utils,
    visual,
)
from .version import __version__
