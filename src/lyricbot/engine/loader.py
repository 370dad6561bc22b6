"""Loading a lyric engine from a "package.module:attribute" path."""

import importlib
import logging

from src.lyricbot.engine.base import LyricEngine

logger = logging.getLogger(__name__)


class EngineLoadError(Exception):
    """Raised when the configured engine cannot be imported or built."""


def load_engine(path: str) -> LyricEngine:
    """Import and return the engine named by an import path.

    The attribute may be an engine instance, or a class or zero-argument
    factory returning one.

    Args:
        path: Import path in "package.module:attribute" form.

    Returns:
        An object implementing LyricEngine.

    Raises:
        EngineLoadError: If the module or attribute is missing, the factory
            fails, or the result does not implement LyricEngine.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise EngineLoadError(f"Invalid engine path {path!r}, expected 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise EngineLoadError(f"Cannot import engine module {module_name!r}: {exc}") from exc

    try:
        target = getattr(module, attribute)
    except AttributeError as exc:
        raise EngineLoadError(f"Module {module_name!r} has no attribute {attribute!r}") from exc

    engine = target
    # a class also passes the protocol check, so classes are always called
    if isinstance(target, type) or (not isinstance(target, LyricEngine) and callable(target)):
        try:
            engine = target()
        except Exception as exc:
            raise EngineLoadError(f"Engine factory {path!r} failed: {exc}") from exc

    if not isinstance(engine, LyricEngine):
        raise EngineLoadError(f"{path!r} does not provide a lyric engine")

    logger.info("Loaded lyric engine", extra={"engine": path})
    return engine
