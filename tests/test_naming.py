from screenbook.naming import NamingOptions, path_to_screen_id, path_to_screen_title


def screen_id(path: str, **options) -> str:
    return path_to_screen_id(path, NamingOptions(**options)).screen_id


def test_root_and_empty_paths_map_to_home() -> None:
    assert screen_id("/") == "home"
    assert screen_id("") == "home"


def test_static_and_parameter_segments() -> None:
    assert screen_id("/billing/invoices") == "billing.invoices"
    assert screen_id("/users/:id") == "users.id"
    assert screen_id("/users/:userId/") == "users.userId"
    assert screen_id("/users/:id?") == "users.id"
    assert screen_id("/items/:id(\\d+)") == "items.id"


def test_catch_all_segments_never_fail() -> None:
    assert screen_id("/:pathMatch(.*)*") == "not-found"
    assert screen_id("*") == "catchall"
    assert screen_id("**") == "catchall"
    assert screen_id("/files/*") == "files.catchall"
    assert screen_id("/docs/*rest") == "docs.rest"


def test_smart_parameter_naming() -> None:
    assert screen_id("/users/:id", smart_parameter_naming=True) == "users.detail"
    assert screen_id("/users/:userId", smart_parameter_naming=True) == "users.user"
    assert screen_id("/users/:id/edit", smart_parameter_naming=True) == "users.id.edit"
    assert screen_id("/users/:id/posts", smart_parameter_naming=True) == "users.detail.posts"
    assert screen_id("/projects/:projectId/tasks", smart_parameter_naming=True) == "projects.projectId.tasks"


def test_parameter_mapping_wins_over_smart_naming() -> None:
    assert screen_id("/users/:id", parameter_mapping={":id": "item"}, smart_parameter_naming=True) == "users.item"


def test_unmapped_parameter_strategies() -> None:
    assert screen_id("/users/:userId", unmapped_parameter_strategy="detail") == "users.detail"

    result = path_to_screen_id("/users/:userId", NamingOptions(unmapped_parameter_strategy="warn"))
    assert result.screen_id == "users.userId"
    assert result.suggestions == ("Consider renaming to: detail, view, user",)

    quiet = path_to_screen_id("/users/:slug/edit", NamingOptions(unmapped_parameter_strategy="warn"))
    assert quiet.screen_id == "users.slug.edit"
    assert quiet.suggestions == ()


def test_screen_titles() -> None:
    assert path_to_screen_title("/") == "Home"
    assert path_to_screen_title("/billing/invoice-list") == "Invoice List"
    assert path_to_screen_title("/user_settings") == "User Settings"
    assert path_to_screen_title("/users/:id") == "Users"
    assert path_to_screen_title("/:pathMatch(.*)*") == "Not Found"
    assert path_to_screen_title("/:id") == "Home"


def test_entity_parameters_need_an_id_suffix() -> None:
    assert screen_id("/users/:uuid", smart_parameter_naming=True) == "users.uuid"
    assert screen_id("/orders/:paid", smart_parameter_naming=True) == "orders.paid"
    assert screen_id("/users/:user_id", smart_parameter_naming=True) == "users.user"

    result = path_to_screen_id("/users/:uuid", NamingOptions(unmapped_parameter_strategy="warn"))
    assert result.suggestions == ("Consider renaming to: detail, view",)
