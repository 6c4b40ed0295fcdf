import json

from django.http import JsonResponse

from bloodbank.results import LedgerResult


def request_data(request):
    """Form-encoded POST data or a JSON object body; None for a malformed body."""
    if request.content_type == 'application/json':
        try:
            body = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return body if isinstance(body, dict) else None
    return request.POST


def json_result(result: LedgerResult) -> JsonResponse:
    return JsonResponse(result.as_dict(), status=result.http_status)
