"""
Services for cargo-feature-aspect.

Graph building, aspect resolution, manifest patching and change planning.
"""
