"""
Bundled read-only resources: sample corpus and embedded models.
"""
