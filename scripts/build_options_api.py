#!/usr/bin/env python
"""Build the static options-chain JSON API.

Typical usage:
    python scripts/build_options_api.py --config config/build_api.yml
    python scripts/build_options_api.py --input option_chain.csv --output api

Thin wrapper around `options_chain_api.apps.build_api`.
"""

from __future__ import annotations

from options_chain_api.apps.build_api import main

if __name__ == "__main__":
    main()
