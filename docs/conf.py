# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

import os
import sys

sys.path.insert(0, os.path.abspath('..'))

project = 'boolbasin'
copyright = '2026, boolbasin developers'
author = 'boolbasin developers'

release = open("../boolbasin/_version.py", "rt").read().split('\'')[1]

# -- General configuration ---------------------------------------------------

extensions = ["sphinx.ext.todo", "sphinx.ext.viewcode", "sphinx.ext.autodoc"]

autodoc_member_order = 'bysource'

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']
