"""
AWS Lambda function to trigger the price signal update via the cron endpoint.

Deploy this to Lambda and schedule with EventBridge (e.g. daily).
"""

import json
import os
import urllib.error
import urllib.request
from typing import Any, Dict


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Call /cron/update-price-signals with the shared bearer secret.

    Environment Variables:
        API_URL: The service base URL (e.g., https://xxx.awsapprunner.com)
        CRON_SECRET: Shared secret, sent as ``Authorization: Bearer <secret>``
        CRON_TIMEOUT: Request timeout in seconds (default: 300)

    EventBridge Rule Example:
        Schedule: cron(0 3 * * ? *)  # Daily at 03:00 UTC
    """
    api_url = os.environ.get("API_URL")
    if not api_url:
        return {"statusCode": 500, "body": json.dumps({"error": "API_URL environment variable not set"})}

    timeout = int(os.environ.get("CRON_TIMEOUT", "300"))
    endpoint = f"{api_url.rstrip('/')}/cron/update-price-signals"

    headers = {"Content-Type": "application/json", "User-Agent": "AgriPriceCronTrigger/1.0"}
    secret = os.environ.get("CRON_SECRET")
    if secret:
        headers["Authorization"] = f"Bearer {secret}"

    request = urllib.request.Request(endpoint, method="POST", headers=headers)

    try:
        print(f"Triggering price signal update at: {endpoint}")

        with urllib.request.urlopen(request, timeout=timeout) as response:
            result = json.loads(response.read().decode("utf-8"))

        print(f"Signal update finished: {json.dumps(result, indent=2)}")
        status = 200 if result.get("success") else 502
        return {"statusCode": status, "body": json.dumps({"success": result.get("success", False), "result": result})}

    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8") if e.fp else str(e)
        print(f"Signal update failed with HTTP {e.code}: {error_body}")

        return {"statusCode": e.code, "body": json.dumps({"success": False, "error": f"HTTP {e.code}: {error_body}"})}

    except urllib.error.URLError as e:
        print(f"Signal update request failed: {str(e)}")

        return {"statusCode": 500, "body": json.dumps({"success": False, "error": f"Connection error: {str(e)}"})}


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        os.environ["API_URL"] = sys.argv[1]

    result = lambda_handler({}, None)
    print(json.dumps(result, indent=2))
