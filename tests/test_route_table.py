"""Tests for sap.routing.table: Asset, RouteTableBuilder, frozen RouteTable."""

import dataclasses

import pytest

from sap.http.headers import Headers
from sap.routing.table import Asset, RouteTable, RouteTableBuilder

CSS = Headers(((b"content-type", b"text/css"),))


class TestAsset:
    def test_copy_shares_buffers(self) -> None:
        asset = Asset(body=b"body { color: red }", headers=CSS)
        copy = asset.copy()
        assert copy == asset
        assert copy is not asset
        assert copy.body is asset.body
        assert copy.headers is asset.headers

    def test_frozen(self) -> None:
        asset = Asset(body=b"x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            asset.body = b"y"  # type: ignore[misc]

    def test_content_type(self) -> None:
        assert Asset(b"", CSS).content_type == "text/css"
        assert Asset(b"").content_type is None


class TestRouteTableBuilder:
    def test_add_and_freeze(self) -> None:
        builder = RouteTableBuilder()
        builder.add("/", Asset(b"<html>"))
        builder.add("/style.css", Asset(b"*{}", CSS))
        table = builder.freeze()
        assert len(table) == 2
        assert set(table) == {"/", "/style.css"}
        assert table.get("/style.css") == Asset(b"*{}", CSS)
        assert table.get("/missing") is None
        assert "/" in table
        assert table.not_found is None

    def test_reserve_first_wins(self) -> None:
        builder = RouteTableBuilder()
        assert builder.reserve("/foo") is True
        assert builder.reserve("/foo") is False
        builder.add("/foo", Asset(b"first"))
        assert builder.reserve("/foo") is False
        assert builder.get("/foo") == Asset(b"first")

    def test_reserved_route_not_visible(self) -> None:
        builder = RouteTableBuilder()
        builder.reserve("/foo")
        assert builder.get("/foo") is None

    def test_add_duplicate_raises(self) -> None:
        builder = RouteTableBuilder()
        builder.add("/foo", Asset(b"a"))
        with pytest.raises(KeyError, match="already registered"):
            builder.add("/foo", Asset(b"b"))

    def test_freeze_with_pending_reservation(self) -> None:
        builder = RouteTableBuilder()
        builder.reserve("/foo")
        with pytest.raises(RuntimeError, match="never loaded"):
            builder.freeze()

    def test_no_changes_after_freeze(self) -> None:
        builder = RouteTableBuilder()
        builder.freeze()
        with pytest.raises(RuntimeError):
            builder.add("/", Asset(b""))
        with pytest.raises(RuntimeError):
            builder.reserve("/")
        with pytest.raises(RuntimeError):
            builder.freeze()

    def test_use_as_not_found_copies_asset(self) -> None:
        builder = RouteTableBuilder()
        index = Asset(b"<html>app</html>")
        builder.add("/", index)
        assert builder.use_as_not_found("/") is True
        table = builder.freeze()
        assert table.not_found == index
        assert table.not_found is not index
        assert table.not_found.body is index.body

    def test_use_as_not_found_missing_route(self) -> None:
        builder = RouteTableBuilder()
        assert builder.use_as_not_found("/") is False
        assert builder.freeze().not_found is None


class TestRouteTable:
    def test_read_only(self) -> None:
        builder = RouteTableBuilder()
        builder.add("/", Asset(b""))
        table = builder.freeze()
        with pytest.raises(TypeError):
            table.routes["/new"] = Asset(b"")  # type: ignore[index]
        with pytest.raises(dataclasses.FrozenInstanceError):
            table.not_found = Asset(b"")  # type: ignore[misc]

    def test_empty_default(self) -> None:
        table = RouteTable()
        assert len(table) == 0
        assert table.get("/") is None
