"""Deployment-time configuration for single page apps.

Two engines, each optional and independent:

* ``HtmlConfigEngine`` finds ``<script type="application/spa-cfg">`` in
  the root page and substitutes its flat JSON config from the
  environment.
* ``JsonConfigEngine`` does the same for a standalone ``config.json``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from sap.env import EnvLookup, ProcessEnv
from sap.errors import TemplateNotFound
from sap.templating.html import HtmlProcessor
from sap.templating.json_env import templatify_from_env
from sap.templating.processors import EnvSubstitutionProcessor, ScriptTag

logger = logging.getLogger("sap.templating")

DEFAULT_SCRIPT_TYPE = "application/spa-cfg"
DEFAULT_ENV_PREFIX = "APP_"


class TemplateTagPresence(Enum):
    """What to do when the config script tag is missing from the page."""

    REQUIRED = "required"
    SKIP_IF_NOT_FOUND = "skip_if_not_found"


@dataclass(frozen=True, slots=True)
class HtmlConfigEngine:
    """Apply env-substituted config to the config script tag of an HTML page."""

    env_prefix: str = DEFAULT_ENV_PREFIX
    template_tag_presence: TemplateTagPresence = TemplateTagPresence.REQUIRED
    script_type: str = DEFAULT_SCRIPT_TYPE
    strict: bool = False
    env: EnvLookup = field(default_factory=ProcessEnv, compare=False)

    def apply(self, body: bytes) -> bytes:
        """Return the templated page.

        With ``SKIP_IF_NOT_FOUND`` a page without the script tag is
        returned unchanged; every other templating error still raises.
        """
        processor = HtmlProcessor(
            ScriptTag(self.script_type),
            EnvSubstitutionProcessor(self.env_prefix, self.env),
            strict=self.strict,
        )
        try:
            return processor.process(body)
        except TemplateNotFound:
            if self.template_tag_presence is TemplateTagPresence.SKIP_IF_NOT_FOUND:
                logger.info("No %s script tag found, leaving the page as-is", self.script_type)
                return body
            raise


@dataclass(frozen=True, slots=True)
class JsonConfigEngine:
    """Apply env substitution to a flat JSON config file."""

    env_prefix: str = DEFAULT_ENV_PREFIX
    env: EnvLookup = field(default_factory=ProcessEnv, compare=False)

    def apply(self, body: bytes) -> bytes:
        return templatify_from_env(body, self.env_prefix, env=self.env).encode("utf-8")
