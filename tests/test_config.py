"""
Configuration Tests
"""
from config import DevelopmentConfig, ProductionConfig, TestingConfig, get_config


class TestGetConfig:
    """Test configuration lookup by environment name"""

    def test_named_environments(self):
        assert get_config('production') is ProductionConfig
        assert get_config('testing') is TestingConfig

    def test_unknown_environment_uses_default(self):
        assert get_config('staging') is DevelopmentConfig

    def test_app_uses_selected_config(self, app):
        assert app.config['TESTING'] is True
        assert app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite:///:memory:'
