from timeseats import create_app

app = create_app()
