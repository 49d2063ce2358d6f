"""Tests for AppServerSettings and AppConfig."""

from __future__ import annotations

import pytest

from shopware_app_server.settings import AppConfig, AppServerSettings


class TestValidate:

    def test_local_defaults_are_valid(self):
        assert AppServerSettings().validate() == []

    def test_missing_app_name(self):
        errors = AppServerSettings(app_name='').validate()
        assert any('app_name is required' in e for e in errors)

    def test_missing_app_secret(self):
        errors = AppServerSettings(app_secret='').validate()
        assert any('app_secret is required' in e for e in errors)

    def test_short_secret_allowed_locally(self):
        assert AppServerSettings(app_secret='short').validate() == []

    def test_short_secret_rejected_outside_local(self):
        errors = AppServerSettings(environment='production', app_secret='short').validate()
        assert any('>= 16 characters' in e for e in errors)

    def test_timeout_must_be_positive(self):
        errors = AppServerSettings(http_timeout_seconds=0).validate()
        assert errors == ['http_timeout_seconds must be positive']


class TestFromEnv:

    def test_defaults(self):
        settings = AppServerSettings.from_env({})
        assert settings.is_local
        assert settings.app_name == 'LocalApp'
        assert settings.app_url == ''
        assert settings.http_timeout_seconds == 30.0

    def test_reads_values(self):
        settings = AppServerSettings.from_env({
            'ENVIRONMENT': 'staging',
            'APP_NAME': 'MyApp',
            'APP_SECRET': 'a-long-enough-secret',
            'APP_URL': 'https://my-app.test',
            'SHOPWARE_HTTP_TIMEOUT': '5',
        })
        assert settings.environment == 'staging'
        assert settings.app_name == 'MyApp'
        assert settings.app_secret == 'a-long-enough-secret'
        assert settings.app_url == 'https://my-app.test'
        assert settings.http_timeout_seconds == 5.0
        assert not settings.is_local


class TestDerived:

    def test_lifecycle_paths(self):
        assert AppServerSettings().lifecycle_paths == {
            '/app/register',
            '/app/register/confirm',
            '/app/install',
            '/app/activate',
            '/app/update',
            '/app/deactivate',
            '/app/delete',
        }

    @pytest.mark.parametrize('app_url, base_url, expected', [
        ('https://my-app.test', None, 'https://my-app.test/app/register/confirm'),
        ('https://my-app.test/', 'http://ignored/', 'https://my-app.test/app/register/confirm'),
        ('', 'http://testserver/', 'http://testserver/app/register/confirm'),
    ])
    def test_authorize_callback_url(self, app_url, base_url, expected):
        settings = AppServerSettings(app_url=app_url)
        assert settings.authorize_callback_url(base_url) == expected

    def test_app_config(self):
        config = AppServerSettings(app_name='MyApp', app_secret='s3cr3t').app_config('http://x/')
        assert config == AppConfig('MyApp', 's3cr3t', 'http://x/app/register/confirm')

    def test_app_config_repr_hides_secret(self):
        config = AppConfig('MyApp', 's3cr3t', 'http://x/app/register/confirm')
        assert 's3cr3t' not in repr(config)
