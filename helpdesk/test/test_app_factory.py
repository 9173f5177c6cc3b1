"""
Configuration loading and request hooks of create_app()
"""
import pytest

from helpdesk import create_app

BASE = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'TESTING': True,
    'RATELIMIT_ENABLED': False,
}


def test_secret_key_is_required(monkeypatch):
    monkeypatch.delenv('SECRET_KEY', raising=False)
    with pytest.raises(RuntimeError, match='SECRET_KEY'):
        create_app(config_overrides=BASE)


def test_secure_defaults(monkeypatch):
    for name in ('ENABLE_HTTPS', 'FORCE_HTTPS_REDIRECT', 'SESSION_COOKIE_SECURE', 'SMTP_PORT', 'SMTP_ENCRYPTION'):
        monkeypatch.delenv(name, raising=False)
    app = create_app(config_overrides=dict(BASE, SECRET_KEY='k'))
    assert app.config['ENABLE_HTTPS'] is True
    assert app.config['FORCE_HTTPS_REDIRECT'] is True
    assert app.config['SESSION_COOKIE_SECURE'] is True
    assert app.config['SMTP_PORT'] is None
    assert app.config['SMTP_ENCRYPTION'] == 'starttls'


def test_environment_values(monkeypatch):
    monkeypatch.setenv('SECRET_KEY', 'from-env')
    monkeypatch.setenv('ENABLE_HTTPS', 'no')
    monkeypatch.setenv('SMTP_PORT', '2525')
    monkeypatch.setenv('SMTP_ENCRYPTION', 'SSL')
    monkeypatch.delenv('APP_URL', raising=False)
    monkeypatch.delenv('NEXT_PUBLIC_APP_URL', raising=False)
    monkeypatch.setenv('VERCEL_URL', 'helpdesk-preview.vercel.app')
    app = create_app(config_overrides=BASE)
    assert app.config['SECRET_KEY'] == 'from-env'
    assert app.config['ENABLE_HTTPS'] is False
    assert app.config['SMTP_PORT'] == 2525
    assert app.config['SMTP_ENCRYPTION'] == 'ssl'
    assert app.config['APP_URL'] == 'helpdesk-preview.vercel.app'


def test_http_is_redirected_and_hsts_sent():
    app = create_app(config_overrides=dict(BASE, SECRET_KEY='k', ENABLE_HTTPS=True, FORCE_HTTPS_REDIRECT=True))
    client = app.test_client()

    response = client.get('/login')
    assert response.status_code == 301
    assert response.headers['Location'].startswith('https://')

    response = client.get('/login', headers={'X-Forwarded-Proto': 'https'})
    assert 'Strict-Transport-Security' in response.headers


def test_no_hsts_without_https(client):
    response = client.get('/login')
    assert 'Strict-Transport-Security' not in response.headers
    assert "cdn.jsdelivr.net" in response.headers['Content-Security-Policy']
