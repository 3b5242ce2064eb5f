"""Sphinx configuration for fastapi-pod."""

project = "fastapi-pod"
author = "fastapi-pod contributors"
release = "0.1.0"

extensions = [
    "myst_parser",
    "autodoc2",
    "sphinx.ext.intersphinx",
]

autodoc2_packages = [
    {
        "path": "../src/fastapi_pod",
        "module": "fastapi_pod",
    },
]

myst_enable_extensions = [
    "colon_fence",
    "fieldlist",
]

templates_path = ["_templates"]
exclude_patterns = ["_build"]

html_theme = "furo"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "fastapi": ("https://fastapi.tiangolo.com", None),
    "httpx": ("https://www.python-httpx.org", None),
}

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
