"""
Conveyor sizing engine and recipe regression harness.

    engine.calculate()       sanitized inputs -> outputs / errors / warnings
    sanitizer.sanitize()     raw client payload -> trusted inputs + audit trail
    canonical                payload equality and hashing
    recipes                  rerun stored configurations, rank drift
"""
