# -*- coding: utf-8 -*-
"""Checked integer arithmetic for contracts; see `safe_uint`."""
