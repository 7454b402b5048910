"""Tests for sap.templating.spa_cfg: the HTML and JSON config engines."""

import json

import pytest

from sap.env import MappingEnv
from sap.errors import ContentProcessorError, TemplateNotFound
from sap.templating.spa_cfg import HtmlConfigEngine, JsonConfigEngine, TemplateTagPresence

PAGE = b"""<!doctype html>
<html>
<head><script type="application/spa-cfg">{"apiUrl": "http://localhost:3000"}</script></head>
<body><div id="root"></div></body>
</html>"""

PLAIN_PAGE = b"<!doctype html><html><body><div id=root></div></body></html>"


class TestHtmlConfigEngine:
    def test_substitutes_config(self) -> None:
        engine = HtmlConfigEngine(env=MappingEnv({"APP_API_URL": "https://api.example.com"}))
        output = engine.apply(PAGE)
        assert output == PAGE.replace(
            b'{"apiUrl": "http://localhost:3000"}', b'{"apiUrl":"https://api.example.com"}'
        )

    def test_custom_prefix_and_script_type(self) -> None:
        page = b'<script type="text/x-config">{"mode": "dev"}</script>'
        engine = HtmlConfigEngine(
            env_prefix="MY_",
            script_type="text/x-config",
            env=MappingEnv({"MY_MODE": "prod", "APP_MODE": "wrong"}),
        )
        assert engine.apply(page) == b'<script type="text/x-config">{"mode":"prod"}</script>'

    def test_required_tag_missing(self) -> None:
        engine = HtmlConfigEngine(env=MappingEnv())
        with pytest.raises(TemplateNotFound):
            engine.apply(PLAIN_PAGE)

    def test_skip_if_not_found(self) -> None:
        engine = HtmlConfigEngine(
            template_tag_presence=TemplateTagPresence.SKIP_IF_NOT_FOUND, env=MappingEnv()
        )
        assert engine.apply(PLAIN_PAGE) == PLAIN_PAGE

    def test_skip_only_covers_missing_tag(self) -> None:
        engine = HtmlConfigEngine(
            template_tag_presence=TemplateTagPresence.SKIP_IF_NOT_FOUND, env=MappingEnv()
        )
        with pytest.raises(ContentProcessorError):
            engine.apply(b'<script type="application/spa-cfg">[1, 2]</script>')

    def test_presence_values(self) -> None:
        assert TemplateTagPresence("required") is TemplateTagPresence.REQUIRED
        assert TemplateTagPresence("skip_if_not_found") is TemplateTagPresence.SKIP_IF_NOT_FOUND


class TestJsonConfigEngine:
    def test_substitutes_config(self) -> None:
        engine = JsonConfigEngine(env=MappingEnv({"APP_FEATURE_FLAG": "on"}))
        output = engine.apply(b'{"featureFlag": "off", "other": "x"}')
        assert json.loads(output) == {"featureFlag": "on", "other": "x"}

    def test_output_is_utf8_bytes(self) -> None:
        engine = JsonConfigEngine(env=MappingEnv({"APP_NAME": "café"}))
        assert engine.apply(b'{"name": ""}') == '{"name":"café"}'.encode()
