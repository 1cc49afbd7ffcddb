# Engine errors. Every failure the economy reports is one of these; callers
# catch EconomyError, the HTTP layer turns it into a JSON error response.


class EconomyError(Exception):
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, **self.details}


# categories

class NotFound(EconomyError):
    status_code = 404

class Conflict(EconomyError):
    status_code = 409

class InvalidInput(EconomyError):
    status_code = 400

class InsufficientFunds(EconomyError):
    status_code = 402

class InconsistentState(EconomyError):
    status_code = 409


# not found

class AccountNotFound(NotFound):
    pass

class CatalogItemNotFound(NotFound):
    pass

class RecordNotFound(NotFound):
    pass

class NotOwned(NotFound):
    pass

class EmptyCatalog(NotFound):
    pass

class EmptyCandidateSet(NotFound):
    pass

class NoCandidates(NotFound):
    pass


# conflict

class HandleTaken(Conflict):
    pass


# invalid input

class InvalidCredentials(InvalidInput):
    pass

class InvalidInputCount(InvalidInput):
    pass

class DuplicateRecords(InvalidInput):
    pass

class MixedTiers(InvalidInput):
    pass

class UnsupportedTier(InvalidInput):
    pass

class NoHigherTier(InvalidInput):
    pass

class PriceMismatch(InvalidInput):
    pass

class InvalidPrice(InvalidInput):
    pass


# inconsistent state

class ConsumptionFailed(InconsistentState):
    pass
