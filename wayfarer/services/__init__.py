"""
Wayfarer Backend - Services Layer
===================================

Business logic between routes (HTTP) and the stores.

Service Inventory:
    - SpotService:      listing, cache-aside reads, owner-gated writes, directions
    - RatingService:    rating CRUD and the average-rating aggregator
    - TransferService:  JSON/CSV/XML export and per-record import
    - LodgingService, FavoriteService, AuthService
    - CommentService, PhotoService: MongoDB-backed documents
    - SpotCache:        Redis cache, best-effort
    - WeatherService:   OpenWeatherMap lookup with retry and circuit breaker
    - FileService:      photo file validation, storage and cleanup

Services are stateless singletons; sessions and backend clients are passed
in per call from the route layer.
"""
