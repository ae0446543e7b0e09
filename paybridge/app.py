# module paybridge.app
from paybridge.app_setup.factory import create_app

# App globale
app = create_app()
