"""mapmark: annotate raster map images and keep annotations in sync.

Points, spots, routes and areas are edited in canvas space and mirrored,
in image space, into a shared remote document store keyed by project id.

Key Components:
    - geometry: points, viewport and canvas/image transforms
    - stores: observable entity stores with undo-friendly change records
    - core.hit_tester: mode-aware picking of entities under the cursor
    - sync: remote gateway, background push pipeline and project sessions
    - data.exports: points, route and spots JSON files
"""

__version__ = "0.1.0"
