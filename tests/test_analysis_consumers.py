"""Tests for namespace consumer discovery in application source."""

from __future__ import annotations

from pathlib import Path

import pytest

from i18nvault.analysis.consumers import (
    build_consumer_map,
    find_namespaces,
    route_for,
    scan_consumers,
)


class TestFindNamespaces:
    """Hook call recognition."""

    def test_hook_forms(self) -> None:
        """All three declaration forms are recognized, first appearance order kept."""
        source = """
            const t = useTranslations("Nav");
            const g = await getTranslations('Greeting');
            const m = await getTranslations({ locale, namespace: `Meta` });
            const again = useTranslations('Nav');
        """
        assert find_namespaces(source) == ["Nav", "Greeting", "Meta"]

    def test_nested_reference_reports_namespace(self) -> None:
        """A sub-path reference counts for its top-level namespace."""
        assert find_namespaces("useTranslations('Nav.menu')") == ["Nav"]

    def test_dynamic_argument_ignored(self) -> None:
        """Non-literal arguments are not static dependencies."""
        assert find_namespaces("useTranslations(name)") == []


class TestRouteFor:
    """Route derivation from file positions."""

    @pytest.mark.parametrize(
        ("relative", "route"),
        [
            ("app/[locale]/page.tsx", "/"),
            ("app/[locale]/(shop)/cart/page.tsx", "/cart"),
            ("app/[locale]/fleet/language/layout.tsx", "/fleet/language"),
            ("components/Header.tsx", "components/Header"),
        ],
    )
    def test_routes(self, relative: str, route: str) -> None:
        """Route groups, the locale segment and the file name are dropped."""
        assert route_for(Path(relative)) == route


class TestScanConsumers:
    """Walking a source tree."""

    def test_scan(self, tmp_path: Path) -> None:
        """Page and layout of one route merge; vendored code is skipped."""
        files = {
            "app/[locale]/about/page.tsx": "useTranslations('About')",
            "app/[locale]/about/layout.tsx": "getTranslations('Nav'); useTranslations('About')",
            "components/Footer.jsx": "useTranslations('Footer')",
            "node_modules/lib/index.js": "useTranslations('Vendor')",
            "app/[locale]/styles.css": "useTranslations('Css')",
        }
        for name, text in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")

        pages = scan_consumers(tmp_path)
        assert pages == {"/about": ["Nav", "About"], "components/Footer": ["Footer"]}

    def test_missing_root(self, tmp_path: Path) -> None:
        """An absent source directory has no consumers."""
        assert scan_consumers(tmp_path / "absent") == {}

    def test_build_consumer_map(self) -> None:
        """Inversion sorts routes per namespace."""
        pages = {"/b": ["Nav"], "/a": ["Nav", "Home"]}
        assert build_consumer_map(pages) == {"Nav": ["/a", "/b"], "Home": ["/a"]}
