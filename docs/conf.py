import os
import sys

# Make the package importable without installing
sys.path.insert(0, os.path.abspath(".."))

project   = "counterfact"
copyright = "2025, counterfact contributors"
author    = "counterfact contributors"
release   = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",       # NumPy-style Parameters / Raises sections
    "sphinx_autodoc_typehints",  # render type hints from annotations
    "sphinx_copybutton",         # copy button on code blocks
]

html_theme = "sphinx_rtd_theme"

# autodoc: show members in source order, include type hints in signatures
autodoc_member_order    = "bysource"
autodoc_typehints       = "description"
always_document_param_types = True

# napoleon: the package writes NumPy-style sections only
napoleon_google_docstring = False
napoleon_numpy_docstring  = True
napoleon_use_param  = True
napoleon_use_rtype  = False

# every public estimator and result class is documented from its docstring
autodoc_default_options = {
    "members": True,
    "show-inheritance": True,
}

master_doc = "index"
exclude_patterns = ["_build"]
