from screenbook.extractors.file_routes import extract_file_routes, route_from_file
from screenbook.flatten import flatten_routes


def test_route_from_file_conventions() -> None:
    assert route_from_file("index.tsx").path == "/"
    assert route_from_file("about.tsx").path == "/about"
    assert route_from_file("users/[id].tsx").path == "/users/:id"
    assert route_from_file("(marketing)/blog/[slug]/page.tsx").path == "/blog/:slug"
    assert route_from_file("docs/[...slug].tsx").path == "/docs/*"
    assert route_from_file("shop/[[...path]]/page.tsx").path == "/shop/*"
    assert route_from_file("posts/$postId.tsx").path == "/posts/:postId"
    assert route_from_file("blog/+page.svelte").path == "/blog"


def test_route_from_file_skips_private_files() -> None:
    assert route_from_file("__root.tsx") is None
    assert route_from_file("users/_layout.tsx") is None


def test_extract_file_routes_keeps_first_duplicate() -> None:
    result = extract_file_routes(["about.tsx", "about/index.tsx", "users/[id].tsx", "_app.tsx"])

    assert [(item.path, item.component) for item in result.routes] == [
        ("/about", "about.tsx"),
        ("/users/:id", "users/[id].tsx"),
    ]
    assert [item.message for item in result.warnings] == [
        'Route "/about" is defined by more than one file: about/index.tsx',
    ]
    assert [item.screen_id for item in flatten_routes(result.routes)] == ["about", "users.id"]


def test_extract_file_routes_without_pages_warns() -> None:
    result = extract_file_routes([])

    assert result.routes == []
    assert result.warnings[0].message.startswith("No routes found.")
