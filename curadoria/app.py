# module curadoria.app
from curadoria.app_setup.factory import create_app

# App globale
app = create_app()
