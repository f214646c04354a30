class IndexerError(Exception):
    pass

class ConfigError(IndexerError):
    pass

class SchemaError(IndexerError):
    pass

class AlreadyRunning(IndexerError):
    def __init__(self, message='Indexing is already running'):
        super().__init__(message)

class NotRunning(IndexerError):
    def __init__(self, message='Indexing is not running'):
        super().__init__(message)

class OutsideConfiguredScope(IndexerError):
    def __init__(self, url):
        super().__init__('Page is outside the sites listed in the configuration: {}'.format(url))
        self.url = url

class FetchError(IndexerError):
    pass
