# -*- coding: utf-8 -*-
"""Access control for vending contracts; see `operated`."""
