"""
GameSwipe Backend: Services Layer
=================================

Business logic between the HTTP routes and the database.

Service Inventory:
    - room_code:       code alphabet, generation and normalisation
    - SessionService:  token minting, hashing, verification, revocation
    - RoomService:     room lifecycle (create, join, fetch, delete)
    - SteamClient:     Steam Web API calls over a shared httpx client
    - SteamIdentityService / SteamLibraryService: identity link and
      owned-games cache

Services receive their collaborators through the constructor and take the
request's AsyncSession as an argument; they flush but never commit.
"""
