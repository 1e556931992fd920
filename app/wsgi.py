from app.utnode import create_app

app = create_app()
