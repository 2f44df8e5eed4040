'''Exception types. Upstream failures are caught inside the components that raise them.'''


class FeedbriefError(Exception):
    '''Base class for feedbrief errors.'''


class ValidationError(FeedbriefError):
    '''Client supplied bad query parameters (offset/limit).'''


class ConfigError(FeedbriefError):
    '''A configuration value could not be loaded.'''


class FeedFetchError(FeedbriefError):
    '''Raised when the feed document cannot be retrieved.'''


class FeedParseError(FeedbriefError):
    '''Raised when a feed document cannot be parsed into items.'''
