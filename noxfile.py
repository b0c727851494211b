# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Configuration file for nox.

Sessions (formatting, linting, type checking and tests) come from
`frequenz-repo-config`; tool options live in `pyproject.toml`.
"""

from frequenz.repo.config import nox
from frequenz.repo.config.nox import default

config = default.lib_config.copy()
config.opts.mypy = []  # Set in pyproject.toml

nox.configure(config)
