"""Routes package for the Hopaba API."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .auth import auth_bp
    from .providers import providers_bp
    from .service_requests import service_requests_bp
    from .messages import messages_bp
    from .reviews import reviews_bp
    from .marketplace import marketplace_bp
    from .events import events_bp
    from .community_notes import notes_bp
    from .wishlist import wishlist_bp
    from .admin import admin_bp
    from .categories import categories_bp
    from .search import search_bp
    from .push import push_bp
    from .uploads import uploads_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(providers_bp, url_prefix='/api/providers')
    app.register_blueprint(service_requests_bp, url_prefix='/api/requests')
    app.register_blueprint(messages_bp, url_prefix='/api/messages')
    app.register_blueprint(reviews_bp, url_prefix='/api/reviews')
    app.register_blueprint(marketplace_bp, url_prefix='/api/marketplace')
    app.register_blueprint(events_bp, url_prefix='/api/events')
    app.register_blueprint(notes_bp, url_prefix='/api/notes')
    app.register_blueprint(wishlist_bp, url_prefix='/api/wishlist')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(categories_bp, url_prefix='/api/categories')
    app.register_blueprint(search_bp, url_prefix='/api/search')
    app.register_blueprint(push_bp, url_prefix='/api/push')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')
