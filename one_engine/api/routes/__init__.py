"""HTTP route families."""

from one_engine.api.routes import admin, ai_quant, auth, connect, forex, health, projects

ROUTERS = [
    health.router,
    auth.router,
    projects.router,
    admin.router,
    connect.router,
    ai_quant.router,
    forex.router,
]

__all__ = ["ROUTERS"]
