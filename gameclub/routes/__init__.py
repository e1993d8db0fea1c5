from gameclub.routes import auth, clubs, dashboard, games, rotations

routers = [auth.router, clubs.router, games.router, rotations.router, dashboard.router]
