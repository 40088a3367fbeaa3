"""Response pipeline step that runs the engine on outgoing documents."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import resolve_config
from .context import ErrorLookup, RequestContext, Response
from .engine import FormPopulator
from .models import RewriteConfig

logger = logging.getLogger(__name__)

# request attribute namespace holding per-request overrides
OVERRIDES_ATTRIBUTE = "formpop"


class FormPopulationFilter:
    """Applies form population to a response when the request calls for it."""

    def __init__(self, parameters: Optional[Mapping[str, Any]] = None) -> None:
        self.parameters = dict(parameters or {})
        resolve_config(self.parameters)

    def resolve(
        self, request: RequestContext, overrides: Optional[Mapping[str, Any]] = None
    ) -> RewriteConfig:
        if overrides is None:
            overrides = request.attributes.get(OVERRIDES_ATTRIBUTE)
        return resolve_config(self.parameters, overrides)

    def should_populate(self, config: RewriteConfig, request: RequestContext) -> bool:
        if isinstance(config.populate, dict):
            return True
        if config.populate is False:
            return False
        return request.method.upper() in config.methods

    def execute(
        self,
        response: Response,
        request: RequestContext,
        errors: Optional[ErrorLookup] = None,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Rewrite ``response.content`` in place; True if it was replaced."""

        if not response.mutable or not response.content:
            return False
        config = self.resolve(request, overrides)
        if config.output_types is not None and response.output_type not in config.output_types:
            logger.debug("Output type %r is not processed", response.output_type)
            return False
        if not self.should_populate(config, request):
            return False

        populator = FormPopulator(config)
        response.content = populator.populate(
            response.content,
            request=request,
            errors=errors,
            content_type=response.content_type,
        )
        return True


__all__ = ["FormPopulationFilter", "OVERRIDES_ATTRIBUTE"]
