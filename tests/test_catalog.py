from apps.rbac.catalog import (
    AVAILABLE_PERMISSIONS,
    RESTRICTED_PERMISSIONS,
    SUGGESTED_ROLE_TEMPLATES,
    custom_role_has_permission,
    format_permissions_for_display,
    get_all_permission_keys,
    get_permission_by_key,
    get_permission_category,
    get_permissions_by_category,
    is_permission_allowed,
    is_restricted,
    validate_permissions,
)


def test_catalog_keys_are_unique():
    keys = get_all_permission_keys()
    assert len(keys) == len(set(keys))
    assert 'products:read' in keys


def test_no_catalog_key_is_restricted():
    assert not [key for key in get_all_permission_keys() if is_restricted(key)]


def test_restricted_wildcards_cover_subkeys():
    assert is_restricted('billing:invoices')
    assert is_restricted('stores:create')
    assert is_restricted('roles:anything')
    assert not is_restricted('products:read')


def test_is_permission_allowed():
    assert is_permission_allowed('orders:refund')
    assert not is_permission_allowed('orders:teleport')
    assert not is_permission_allowed('billing:manage')


def test_validate_permissions_accepts_catalog_keys():
    valid, errors, invalid = validate_permissions(['products:read', 'orders:update'])
    assert valid
    assert errors == []
    assert invalid == []


def test_validate_permissions_reports_unknown_and_restricted():
    valid, errors, invalid = validate_permissions(['products:read', 'billing:manage', 'made:up'])
    assert not valid
    assert invalid == ['billing:manage', 'made:up']
    assert errors[0] == 'Permission "billing:manage" is not available for custom roles'
    assert errors[1] == 'Permission "made:up" is not available for custom roles'


def test_templates_only_use_requestable_permissions():
    for name, permissions in SUGGESTED_ROLE_TEMPLATES.items():
        valid, errors, _ = validate_permissions(permissions)
        assert valid, (name, errors)


def test_permission_lookup_by_key():
    permission = get_permission_by_key('orders:update')
    assert permission['key'] == 'orders:update'
    assert permission['name'] == 'Process Orders'
    assert get_permission_by_key('platform:manage') is None


def test_permission_category_lookup():
    assert get_permission_category('inventory:update') == 'Inventory'
    assert get_permission_category('nope:nope') is None


def test_format_permissions_for_display_groups_in_request_order():
    grouped = format_permissions_for_display(['orders:read', 'products:read', 'orders:update', 'bogus:key'])
    assert [group['category'] for group in grouped] == ['Orders', 'Products']
    assert [p['key'] for p in grouped[0]['permissions']] == ['orders:read', 'orders:update']


def test_permissions_by_category_shape():
    by_category = get_permissions_by_category()
    assert set(by_category) == {category['category'] for category in AVAILABLE_PERMISSIONS}
    first = by_category['Products'][0]
    assert set(first) == {'key', 'label', 'description'}


def test_custom_role_permission_matching():
    assert custom_role_has_permission(['orders:*'], 'orders:refund')
    assert custom_role_has_permission(['orders:read'], 'orders:read')
    assert not custom_role_has_permission(['orders:read'], 'orders:update')
    # A global wildcard is not honoured for custom roles
    assert not custom_role_has_permission(['*'], 'orders:read')


def test_restricted_list_contains_platform_scopes():
    assert 'platform:*' in RESTRICTED_PERMISSIONS
    assert 'users:*' in RESTRICTED_PERMISSIONS
