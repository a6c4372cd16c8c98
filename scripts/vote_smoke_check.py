from __future__ import annotations

import argparse
import json
import urllib.error
import urllib.parse
import urllib.request


def _get_json(url: str) -> dict:
    with urllib.request.urlopen(url, timeout=20) as resp:
        assert resp.status == 200, f"GET {url} failed: {resp.status}"
        return json.loads(resp.read().decode("utf-8"))


def _post_form(url: str, form: dict[str, str], cookie: str = "") -> tuple[int, str, str]:
    data = urllib.parse.urlencode(form).encode("utf-8")
    req = urllib.request.Request(url, data=data, method="POST")
    if cookie:
        req.add_header("Cookie", cookie)
    try:
        with urllib.request.urlopen(req, timeout=20) as resp:
            body = resp.read().decode("utf-8", errors="ignore")
            set_cookie = resp.headers.get("Set-Cookie", "")
            return resp.status, body, set_cookie.split(";", 1)[0]
    except urllib.error.HTTPError as e:
        return e.code, e.read().decode("utf-8", errors="ignore"), ""


def run(base: str, max_votes: int) -> None:
    base = base.rstrip("/")

    pair = _get_json(f"{base}/api/compare")
    a, b = pair["imageA"], pair["imageB"]
    assert a["id"] != b["id"], "Comparison returned the same image twice"

    status, body, cookie = _post_form(f"{base}/api/compare", {"winnerId": str(a["id"]), "loserId": str(b["id"])})
    assert status == 200 and json.loads(body).get("success") is True, f"Vote failed: {status} {body}"
    assert cookie, "Vote response did not set a session cookie"

    board = _get_json(f"{base}/api/leaderboard?limit=500")
    ratings = {img["id"]: img["rating"] for img in board["images"]}
    if a["id"] in ratings:
        assert ratings[a["id"]] > a["rating"], "Winner rating did not increase"

    # Invalid vote must be rejected without state change.
    status, _, _ = _post_form(f"{base}/api/compare", {"winnerId": str(a["id"]), "loserId": str(a["id"])})
    assert status == 400, f"Self vote was not rejected: {status}"

    limited = False
    for _ in range(max_votes):
        status, _, _ = _post_form(
            f"{base}/api/compare", {"winnerId": str(b["id"]), "loserId": str(a["id"])}, cookie=cookie
        )
        if status == 429:
            limited = True
            break
        assert status == 200, f"Unexpected vote status: {status}"
    assert limited, f"No 429 after {max_votes} votes"

    print("OK: comparison, vote, validation and rate limit checks passed")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke check a running Image Arena server.")
    parser.add_argument("--base", default="http://127.0.0.1:8080")
    parser.add_argument("--max-votes", type=int, default=100)
    args = parser.parse_args()
    run(args.base, args.max_votes)


if __name__ == "__main__":
    main()
