"""What a plugin package exports under its entry point."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True, kw_only=True)
class Manifest[ConfigT: BaseModel, ImplT]:
    """Pairs a plugin's settings model with the factory that opens it.

    ``factory`` receives the parsed settings and yields the catalog, issue
    tracker or dashboard for the duration of the ``async with`` block.
    """

    config_cls: type[ConfigT]
    factory: Callable[[ConfigT], AbstractAsyncContextManager[ImplT]]

    def configure(self, config_json: str) -> ConfigT:
        """Parse command-line JSON into the plugin settings.

        Raises:
            pydantic.ValidationError: If the JSON is malformed or does not fit
                ``config_cls``

        """
        return self.config_cls.model_validate_json(config_json)
