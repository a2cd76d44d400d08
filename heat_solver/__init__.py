"""ASTM C-680 Heat Balance — Solver Package.

Steady-state Gauss-Seidel heat-balance iteration through flat or
cylindrical multi-layer insulation, with fixed or correlated external
surface coefficients.
"""
