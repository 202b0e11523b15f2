"""Typed failures returned by ledger operations.

Each failure carries the message kind the API reports and the HTTP status
the resources answer with.
"""


class ParkPayError(Exception):
    kind = 'Error'
    status_code = 400

    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg

    def to_response(self):
        return {'msg': self.msg, 'kind': self.kind}, self.status_code


class InvalidPayload(ParkPayError):
    kind = 'InvalidPayload'
    status_code = 400


class NotFound(ParkPayError):
    kind = 'NotFound'
    status_code = 404


class LedgerError(ParkPayError):
    """Business rule violation, e.g. insufficient balance."""
    kind = 'Error'
    status_code = 400


class Forbidden(ParkPayError):
    kind = 'Forbidden'
    status_code = 403
