from relaychat.config import Settings


def test_defaults(monkeypatch):
    for name in ('MONGODB_URI', 'MONGO_URI', 'MONGODB_DB', 'PORT', 'CORS_ORIGINS', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.mongodb_uri == 'mongodb://localhost:27017'
    assert s.mongodb_db == 'relaychat'
    assert s.port == 5000
    assert s.cors_origins == ['*']
    assert s.log_level == 'INFO'


def test_environment_overrides(monkeypatch):
    monkeypatch.delenv('MONGODB_URI', raising=False)
    monkeypatch.setenv('MONGO_URI', 'mongodb://db.internal:27017')
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('CORS_ORIGINS', 'http://a.test, http://b.test')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    s = Settings.from_env()
    assert s.mongodb_uri == 'mongodb://db.internal:27017'
    assert s.port == 8080
    assert s.cors_origins == ['http://a.test', 'http://b.test']
    assert s.log_level == 'DEBUG'


def test_mongodb_uri_wins_over_mongo_uri(monkeypatch):
    monkeypatch.setenv('MONGODB_URI', 'mongodb://primary:27017')
    monkeypatch.setenv('MONGO_URI', 'mongodb://legacy:27017')
    assert Settings.from_env().mongodb_uri == 'mongodb://primary:27017'
