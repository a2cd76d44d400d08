"""ASTM C-680 Heat Balance — Case Package.

YAML insulation cases, batch runner, and result persistence.
"""
