"""
Wayfarer Backend - API Routes Package
=======================================

Route Inventory:
    - auth.py:        /auth/register, /auth/login, /auth/me
    - spots.py:       /spots, /spots/{id}
    - ratings.py:     /ratings/spot/{spotId}[/my-rating]
    - lodgings.py:    /lodgings, /lodgings/spot/{spotId}, /lodgings/{id}
    - favorites.py:   /favorites[/{spotId}]
    - comments.py:    /comments/spot/{spotId}, /comments/{id}[/reply]
    - photos.py:      /photos/spot/{spotId}, /photos/{id}, /uploads/{filename}
    - transfer.py:    /export/spots, /import/spots
    - directions.py:  /directions/spot/{spotId}
    - health.py:      /health

Routes stay THIN: extract input, call a service, pick the status code.
"""
