import logging
from html import escape
from typing import Optional, Tuple

import httpx
from app.core.config import settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

PAGE_GID_PREFIX = "gid://shopify/OnlineStorePage/"

PAGE_CREATE = """
mutation pageCreate($page: PageCreateInput!) {
  pageCreate(page: $page) {
    page { id handle title }
    userErrors { field message }
  }
}
"""

PAGE_UPDATE = """
mutation pageUpdate($id: ID!, $page: PageUpdateInput!) {
  pageUpdate(id: $id, page: $page) {
    page { id handle title }
    userErrors { field message }
  }
}
"""

PAGE_DELETE = """
mutation pageDelete($id: ID!) {
  pageDelete(id: $id) {
    deletedId
    userErrors { field message }
  }
}
"""


def page_gid(page_id: int) -> str:
    return f"{PAGE_GID_PREFIX}{page_id}"


def page_id_from_gid(gid: str) -> Optional[int]:
    tail = str(gid or "").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


def page_handle(quiz_id: int) -> str:
    return f"quiz-{quiz_id}"


def render_quiz_iframe(quiz_id: int, shop_domain: str) -> str:
    """Page body embedding the hosted quiz; the store's query string (UTMs) is forwarded to the iframe."""
    base_url = (settings.SHOPIFY_APP_URL or settings.FRONTEND_URL).rstrip("/")
    quiz_url = escape(f"{base_url}/embed/quiz/{quiz_id}", quote=True)
    iframe_id = f"quiz-iframe-{quiz_id}"
    return (
        f'<div id="quiz-container" data-shop="{escape(shop_domain, quote=True)}">'
        f'<iframe id="{iframe_id}" width="100%" height="100%" frameborder="0"></iframe>'
        f"</div>"
        f"<script>(function(){{"
        f'var el=document.getElementById("{iframe_id}");'
        f'if(el){{el.src="{quiz_url}"+window.location.search;}}'
        f"}})();</script>"
    )


class ShopifyPagesClient:
    """Online Store page CRUD over the Admin GraphQL API."""

    def __init__(self, shop_domain: str, access_token: str, client: Optional[httpx.Client] = None,
                 api_version: Optional[str] = None):
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        # an injected client belongs to the caller and is left open
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=10.0)

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def _execute(self, operation: str, query: str, variables: dict) -> dict:
        try:
            response = self.client.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers={"X-Shopify-Access-Token": self.access_token},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Shopify {operation} request failed: {e}")

        try:
            body = response.json()
        except ValueError:
            raise ExternalServiceError(f"Shopify {operation} returned a non-JSON response")
        if not isinstance(body, dict):
            raise ExternalServiceError(f"Invalid response from Shopify {operation}")
        if body.get("errors"):
            raise ExternalServiceError(f"Shopify {operation} errors: {body['errors']}")

        data = body.get("data")
        result = data.get(operation) if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise ExternalServiceError(f"Invalid response from Shopify {operation}")

        user_errors = result.get("userErrors") or []
        if user_errors:
            messages = ", ".join(f"{e.get('field')}: {e.get('message')}" for e in user_errors)
            raise ExternalServiceError(f"Shopify {operation} errors: {messages}")
        return result

    def _page_result(self, operation: str, result: dict) -> Tuple[int, str]:
        page = result.get("page")
        if not isinstance(page, dict):
            raise ExternalServiceError(f"Shopify {operation} returned no page")
        page_id = page_id_from_gid(page.get("id"))
        if page_id is None:
            raise ExternalServiceError(f"Shopify {operation} returned no page id")
        if not page.get("handle"):
            raise ExternalServiceError(f"Shopify {operation} returned no page handle")
        return page_id, page["handle"]

    def create_page(self, title: str, body_html: str, handle: str) -> Tuple[int, str]:
        result = self._execute("pageCreate", PAGE_CREATE, {
            "page": {"title": title, "body": body_html, "handle": handle, "isPublished": True},
        })
        page_id, page_handle_ = self._page_result("pageCreate", result)
        logger.info("Shopify page %s created on %s (handle %s)", page_id, self.shop_domain, page_handle_)
        return page_id, page_handle_

    def update_page(self, page_id: int, title: Optional[str] = None, body_html: Optional[str] = None) -> Tuple[int, str]:
        page = {}
        if title is not None:
            page["title"] = title
        if body_html is not None:
            page["body"] = body_html
        result = self._execute("pageUpdate", PAGE_UPDATE, {"id": page_gid(page_id), "page": page})
        return self._page_result("pageUpdate", result)

    def delete_page(self, page_id: int) -> bool:
        result = self._execute("pageDelete", PAGE_DELETE, {"id": page_gid(page_id)})
        deleted = result.get("deletedId") is not None
        logger.info("Shopify page %s deleted on %s", page_id, self.shop_domain)
        return deleted
