"""ASTM C-680 Heat Balance — Core Package.

Configuration, error taxonomy, temperature-dependent insulation
conductivity models and layer-stack geometry.
"""
