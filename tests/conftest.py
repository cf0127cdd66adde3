from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

LOGO_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\xff\xfe"
FONT_BYTES = bytes(range(256))

BROWSER_WARNING = """<div id="browser-warning">
    <p>Your browser is not supported.</p>
</div>
"""

INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <link rel="icon" href="/images/logo.png">
    <!-- build:css -->
    <link rel="stylesheet" href="/css/style.css">
    <!-- endbuild -->
</head>
<body>
    <!-- build:browser-warning -->
    <!-- endbuild -->
    <img src="/images/logo.png" alt="logo">
    <!-- build:js -->
    <script type="module" src="/js/app.js"></script>
    <!-- endbuild -->
</body>
</html>
"""

APP_JS = """import { greet } from './greeter.js';
import { LOGO } from '/js/lib/constants';

greet(LOGO);
"""

GREETER_JS = """import { LOGO } from '/js/lib/constants.js';

export function greet(target) {
    console.log('hello', target, LOGO);
}
"""

CONSTANTS_JS = """export const LOGO = '/images/logo.png';
export const FONT = '/fonts/icons.woff2';
"""

STYLE_CSS = """@charset "utf-8";
@import "/css/base.css";
@import url("components.css");

body {
    background: url(/images/logo.png) no-repeat;
}
"""

BASE_CSS = """@charset "utf-8";
html {
    margin: 0;
}
"""

COMPONENTS_CSS = """@import "/css/base.css";

@font-face {
    font-family: icons;
    src: url('/fonts/icons.woff2');
}
"""


@dataclass(slots=True)
class SampleProject:
    """Paths of a small front-end tree used across the tests."""

    root: Path
    script_entry: Path
    style_entry: Path
    markup_entry: Path
    assets: tuple[str, ...]

    @property
    def output(self) -> Path:
        return self.root / "dist"


def write_project(root: Path) -> SampleProject:
    files = {
        "index.html": INDEX_HTML,
        "js/app.js": APP_JS,
        "js/greeter.js": GREETER_JS,
        "js/lib/constants.js": CONSTANTS_JS,
        "css/style.css": STYLE_CSS,
        "css/base.css": BASE_CSS,
        "css/components.css": COMPONENTS_CSS,
        "elements/browser-warning/browser-warning.html.template": BROWSER_WARNING,
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    (root / "images").mkdir()
    (root / "images" / "logo.png").write_bytes(LOGO_BYTES)
    (root / "fonts").mkdir()
    (root / "fonts" / "icons.woff2").write_bytes(FONT_BYTES)

    return SampleProject(
        root=root,
        script_entry=root / "js" / "app.js",
        style_entry=root / "css" / "style.css",
        markup_entry=root / "index.html",
        assets=("/images/logo.png", "/fonts/icons.woff2"),
    )


@pytest.fixture
def project(tmp_path: Path) -> SampleProject:
    return write_project(tmp_path / "proj")
