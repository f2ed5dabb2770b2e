from flask import jsonify


def success(status: int, message: str, data=None):
    """
    Build a success envelope.

    Args:
        status (int): HTTP status code, echoed in the body.
        message (str): Human readable outcome.
        data (Any): Payload placed under ``response``.

    Returns:
        tuple: Flask response and status code.
    """
    return jsonify({"status": status, "success": True, "message": message, "response": data}), status


def error(status: int, message: str, occurred_in: str):
    """
    Build a failure envelope.

    Args:
        status (int): HTTP status code, echoed in the body.
        message (str): Description of the failure.
        occurred_in (str): Name of the operation that failed.

    Returns:
        tuple: Flask response and status code.
    """
    return jsonify({"status": status, "success": False, "message": message, "occurredAt": occurred_in}), status
