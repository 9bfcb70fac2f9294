from autocrm import create_app

app = create_app()
