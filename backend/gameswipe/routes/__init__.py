"""
GameSwipe Backend: API Routes Package
=====================================

Route Inventory:
    - rooms.py:   POST /rooms, POST /rooms/join,
                  GET /rooms/{room_id}, DELETE /rooms/{room_id}
    - steam.py:   PUT/GET /steam/identity, POST /steam/library/sync,
                  GET /steam/library
    - health.py:  GET /health

Handlers stay thin: parse the request, call a service, shape the response.
"""
