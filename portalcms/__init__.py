"""
PortalCMS — Admin Console for the Gaming Portal CMS
====================================================
Lets operators curate the portal's public content: announcements,
notifications, promotional banners, game providers (with drag reordering)
and per-game tags.  All data lives behind the CMS REST backend; this
package holds the client-side state, list views and form rules.

Package layout::

    portalcms/
    ├── config.py          # YAML + env → typed config
    ├── constants.py       # Statuses, filters, provider catalog codes
    ├── models.py          # Pydantic wire models (announcement … game)
    ├── console.py         # AdminConsole: wires stores, views and forms
    ├── engine/
    │   ├── status.py      # Effective status, date formatting
    │   ├── tags.py        # Game tag flags, priority sort
    │   ├── listing.py     # Filter / search / paginate / select / delete
    │   └── reorder.py     # Provider drag-reorder
    └── services/
        ├── backend.py         # httpx boundary → ApiResult
        ├── stores.py          # Per-entity collection stores
        ├── catalog_service.py # Provider game catalog + tag toggling
        ├── upload_service.py  # Image validation + upload
        ├── forms.py           # Create/edit form controllers
        ├── feedback.py        # Auto-dismissing notices
        └── dashboard.py       # Count cards + banner rotation
"""

__version__ = "0.1.0"
