"""Custom errors for the lending market model"""

class ProtocolError(Exception):
    """Base error class for protocol errors"""
    pass

class InvalidOracle(ProtocolError):
    """Oracle account does not match the market's configured oracle"""
    pass

class OracleInvalidReturnData(ProtocolError):
    """Oracle account data could not be parsed"""
    pass

class OracleStale(ProtocolError):
    """Oracle value is too old, has too few samples or is not positive"""
    pass

class OraclePriceTooLow(ProtocolError):
    """Oracle price below MIN_ORACLE_PRICE"""
    pass

class OraclePriceTooHigh(ProtocolError):
    """Oracle price above the maximum oracle price"""
    pass

class MathOverflow(ProtocolError):
    """Error for arithmetic overflow/underflow or division by zero"""
    pass

class InvalidPositionError(ProtocolError):
    """Error for invalid position operations"""
    pass

class ConfigError(ProtocolError):
    """Error for inconsistent risk parameters"""
    pass

class FeedError(Exception):
    """Raised by the pull feed model; never surfaced past the oracle gateway"""
    pass
