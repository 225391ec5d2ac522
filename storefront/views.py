"""Minimal server-rendered pages for browser clients."""

from collections.abc import Callable
from html import escape
from typing import Any

PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<nav><a href="/">Upload</a> | <a href="/products">Products</a> | <a href="/logout">Logout</a></nav>
<h1>{title}</h1>
{message}
{body}
</body>
</html>
"""


def _page(title: str, body: str, message: str | None = None) -> str:
    notice = f'<p class="message">{escape(message)}</p>' if message and message != title else ""
    return PAGE.format(title=escape(title), message=notice, body=body)


def _input(name: str, label: str, value: Any = "", kind: str = "text", required: bool = True) -> str:
    attrs = ' required' if required else ''
    step = ' step="any"' if kind == "number" else ''
    return (
        f'<label>{escape(label)} <input type="{kind}" name="{name}"'
        f' value="{escape(str(value))}"{step}{attrs}></label><br>'
    )


def _signup(ctx: dict[str, Any]) -> str:
    body = (
        '<form method="post" action="/signup">'
        + _input("name", "Name")
        + _input("email", "Email", kind="email")
        + _input("password", "Password", kind="password")
        + '<button type="submit">Sign up</button></form>'
        + '<p><a href="/login">Already have an account?</a></p>'
    )
    return _page("Sign up", body, ctx.get("message"))


def _login(ctx: dict[str, Any]) -> str:
    body = (
        '<form method="post" action="/login">'
        + _input("email", "Email", kind="email")
        + _input("password", "Password", kind="password")
        + '<button type="submit">Log in</button></form>'
        + '<p><a href="/signup">Create an account</a></p>'
    )
    return _page("Log in", body, ctx.get("message"))


def _upload(ctx: dict[str, Any]) -> str:
    body = (
        '<form method="post" action="/upload" enctype="multipart/form-data">'
        + _input("title", "Title")
        + _input("details", "Details")
        + _input("price", "Price", kind="number")
        + _input("rating", "Rating (0-5)", kind="number")
        + _input("categories", "Categories (comma separated)", required=False)
        + '<label>Image <input type="file" name="image" accept="image/*" required></label><br>'
        + '<button type="submit">Upload</button></form>'
    )
    return _page("Upload product", body, ctx.get("message"))


def _product_card(product: dict[str, Any]) -> str:
    rating = product.get("rating") or {}
    categories = ", ".join(product.get("categories") or [])
    return (
        f'<article><a href="/products/{product["id"]}">'
        f'<img src="{escape(product["image"])}" alt="{escape(product["title"])}" width="160"></a>'
        f'<h2>{escape(product["title"])}</h2>'
        f'<p>{escape(product["details"])}</p>'
        f'<p>Price: {product["price"]:.2f} | Rating: {rating.get("rate", 0)} ({rating.get("count", 0)})</p>'
        f'<p>Categories: {escape(categories)}</p></article>'
    )


def _products(ctx: dict[str, Any]) -> str:
    products = ctx.get("products") or []
    body = "".join(_product_card(p) for p in products) or "<p>No products yet.</p>"
    return _page("All Products", body)


def _product_detail(ctx: dict[str, Any]) -> str:
    product = ctx["product"]
    body = (
        _product_card(product)
        + f'<p><a href="/edit/{product["id"]}">Edit</a></p>'
        + f'<form method="post" action="/delete/{product["id"]}"><button type="submit">Delete</button></form>'
    )
    return _page(product["title"], body)


def _edit_product(ctx: dict[str, Any]) -> str:
    product = ctx["product"]
    body = (
        f'<form method="post" action="/edit/{product["id"]}" enctype="multipart/form-data">'
        + _input("title", "Title", product["title"])
        + _input("details", "Details", product["details"])
        + _input("price", "Price", product["price"], kind="number")
        + _input("rating", "Rating (0-5)", (product.get("rating") or {}).get("rate", 0), kind="number")
        + '<label>Replace image <input type="file" name="image" accept="image/*"></label><br>'
        + '<button type="submit">Save</button></form>'
    )
    return _page("Edit product", body)


def _error(ctx: dict[str, Any]) -> str:
    return _page(f"Error {ctx.get('status_code', 500)}", "", ctx.get("message"))


VIEWS: dict[str, Callable[[dict[str, Any]], str]] = {
    "signup": _signup,
    "login": _login,
    "upload": _upload,
    "products": _products,
    "product_detail": _product_detail,
    "edit_product": _edit_product,
    "error": _error,
}


def render(name: str, context: dict[str, Any]) -> str:
    """Render a named view; raises KeyError for unknown views."""
    return VIEWS[name](context)
