"""
Pytest configuration and fixtures for the helpdesk tests
"""
import pytest
from helpdesk import create_app
from helpdesk import db as _db
from helpdesk.data.core.location import Location
from helpdesk.data.core.user_info.user import User

TEST_PASSWORD = 'test-password-123'


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing (in-memory SQLite)"""
    app = create_app(config_overrides={
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'ENABLE_HTTPS': False,
        'FORCE_HTTPS_REDIRECT': False,
        'SESSION_COOKIE_SECURE': False,
        'REMEMBER_COOKIE_SECURE': False,
        'SMTP_HOST': None,
        'APP_URL': 'https://helpdesk.test',
    })
    return app


@pytest.fixture(scope='function')
def db(app):
    """Fresh schema per test, inside an application context"""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def location(db):
    location = Location(name='Casa Matriz', code='HQ', city='Ciudad de México', is_active=True)
    db.session.add(location)
    db.session.commit()
    return location


@pytest.fixture(scope='function')
def other_location(db):
    location = Location(name='Guadalajara', code='GDL', city='Guadalajara', is_active=True)
    db.session.add(location)
    db.session.commit()
    return location


@pytest.fixture(scope='function')
def make_user(db):
    """Factory: make_user('agent1', 'agent_l1', locations=[location])"""
    def _make(username, role, locations=(), email=None, is_active=True, **fields):
        user = User(
            username=username,
            email=email or f'{username}@helpdesk.test',
            full_name=fields.pop('full_name', username.title()),
            role=role,
            is_active=is_active,
            **fields,
        )
        user.set_password(TEST_PASSWORD)
        user.locations = list(locations)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def admin(make_user, location):
    return make_user('admin', 'admin', locations=[location])


@pytest.fixture(scope='function')
def supervisor(make_user, location):
    return make_user('supervisor1', 'supervisor', locations=[location])


@pytest.fixture(scope='function')
def agent(make_user, location):
    return make_user('agent1', 'agent_l1', locations=[location])


@pytest.fixture(scope='function')
def agent_l2(make_user, location):
    return make_user('agent2', 'agent_l2', locations=[location])


@pytest.fixture(scope='function')
def requester(make_user, location):
    return make_user('requester1', 'requester', locations=[location])


@pytest.fixture(scope='function')
def outbox(app, monkeypatch):
    """Enable SMTP and capture every message instead of sending it"""
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host
            self.port = port

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def starttls(self):
            pass

        def login(self, user, password):
            pass

        def send_message(self, message):
            sent.append(message)

    monkeypatch.setitem(app.config, 'SMTP_HOST', 'smtp.helpdesk.test')
    monkeypatch.setitem(app.config, 'SMTP_FROM', 'helpdesk@helpdesk.test')
    monkeypatch.setattr('helpdesk.buisness.notifications.mailer.smtplib.SMTP', FakeSMTP)
    return sent


@pytest.fixture(scope='function')
def authenticated_client(client, admin):
    """Test client logged in as the admin user"""
    login_user(client, admin.username)
    return client


def login_user(client, username='admin', password=TEST_PASSWORD):
    """Helper function to login a user"""
    return client.post('/login', data={
        'username': username,
        'password': password
    }, follow_redirects=False)


def recipients_of(outbox):
    return [message['To'] for message in outbox]
