"""
Internal library package for mea-form-service.

This package holds the dynamic form engine (schema resolution, subject
selection, wizard state, submission assembly). The HTTP entrypoint stays
under `api/` at the repo root.
"""
