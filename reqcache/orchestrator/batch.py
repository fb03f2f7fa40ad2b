from typing import Any, Dict, List


def merge_batch_responses(responses: List[Dict[str, Any]]) -> Dict[str, List[Any]]:
    """Merge per-call responses into one, each field a list in submission order.

    Fields are the union over all responses in first-seen order; a response
    lacking a field contributes ``None`` at its position.
    """
    fields: List[str] = []
    for response in responses:
        for key in response:
            if key not in fields:
                fields.append(key)

    return {key: [response.get(key) for response in responses] for key in fields}
