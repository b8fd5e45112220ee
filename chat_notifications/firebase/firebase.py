import json
import logging

import firebase_admin
import google.cloud.firestore
from firebase_admin import credentials, firestore

from ..config import settings

logger = logging.getLogger(__name__)


class FirebaseApp:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseApp, cls).__new__(cls)
            cls._instance.initialized = False
        return cls._instance

    def __init__(self):
        if self.initialized:
            return
        logger.info("FirebaseApp.__init__() called")
        self.app = None
        self.firestore_db = None
        self.connect()
        self.initialized = True

    def get_app(self) -> firebase_admin.App:
        return self.app

    def get_firestore_db(self) -> google.cloud.firestore.Client:
        return self.firestore_db

    def connect(self) -> None:
        try:
            # Try to get the existing default app
            self.app = firebase_admin.get_app()
            logger.info("Retrieved existing Firebase app")
        except ValueError:
            self.app = firebase_admin.initialize_app(credential=self._load_credential())
            logger.info(f"Initialized Firebase app. App name: {self.app.name}")
        self.firestore_db = firestore.client(self.app)

    @staticmethod
    def _load_credential():
        cert_json = settings.firebase_secret
        if not cert_json:
            # Cloud Functions runtime provides Application Default Credentials
            return credentials.ApplicationDefault()
        cert_dict = json.loads(cert_json)
        if isinstance(cert_dict, str):
            cert_dict = json.loads(cert_dict)
        return credentials.Certificate(cert_dict)
