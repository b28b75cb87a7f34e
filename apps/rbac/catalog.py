"""
Permissions that store admins may request for custom roles.

Custom roles are built from this catalog only. Anything in
RESTRICTED_PERMISSIONS stays with the predefined roles and super admins.
"""

AVAILABLE_PERMISSIONS = [
    {
        'category': 'Products',
        'description': 'Product catalog management',
        'permissions': [
            {'key': 'products:read', 'name': 'View Products', 'description': 'View all products in the store'},
            {'key': 'products:create', 'name': 'Create Products', 'description': 'Add new products to the store'},
            {'key': 'products:update', 'name': 'Edit Products', 'description': 'Modify existing product information'},
            {'key': 'products:delete', 'name': 'Delete Products', 'description': 'Remove products from the store'},
        ],
    },
    {
        'category': 'Categories',
        'description': 'Category management',
        'permissions': [
            {'key': 'categories:read', 'name': 'View Categories', 'description': 'View product categories'},
            {'key': 'categories:create', 'name': 'Create Categories', 'description': 'Add new categories'},
            {'key': 'categories:update', 'name': 'Edit Categories', 'description': 'Modify category information'},
            {'key': 'categories:delete', 'name': 'Delete Categories', 'description': 'Remove categories'},
        ],
    },
    {
        'category': 'Brands',
        'description': 'Brand management',
        'permissions': [
            {'key': 'brands:read', 'name': 'View Brands', 'description': 'View product brands'},
            {'key': 'brands:create', 'name': 'Create Brands', 'description': 'Add new brands'},
            {'key': 'brands:update', 'name': 'Edit Brands', 'description': 'Modify brand information'},
            {'key': 'brands:delete', 'name': 'Delete Brands', 'description': 'Remove brands'},
        ],
    },
    {
        'category': 'Orders',
        'description': 'Order processing and management',
        'permissions': [
            {'key': 'orders:read', 'name': 'View Orders', 'description': 'View all orders'},
            {'key': 'orders:create', 'name': 'Create Orders', 'description': 'Create manual orders'},
            {'key': 'orders:update', 'name': 'Process Orders', 'description': 'Update order status and details'},
            {'key': 'orders:cancel', 'name': 'Cancel Orders', 'description': 'Cancel pending orders'},
            {'key': 'orders:refund', 'name': 'Process Refunds', 'description': 'Issue refunds for orders'},
        ],
    },
    {
        'category': 'Customers',
        'description': 'Customer relationship management',
        'permissions': [
            {'key': 'customers:read', 'name': 'View Customers', 'description': 'View customer information'},
            {'key': 'customers:create', 'name': 'Add Customers', 'description': 'Add new customers manually'},
            {'key': 'customers:update', 'name': 'Edit Customers', 'description': 'Update customer information'},
            {'key': 'customers:delete', 'name': 'Delete Customers', 'description': 'Remove customer records'},
        ],
    },
    {
        'category': 'Inventory',
        'description': 'Stock and inventory management',
        'permissions': [
            {'key': 'inventory:read', 'name': 'View Inventory', 'description': 'View stock levels and inventory'},
            {'key': 'inventory:update', 'name': 'Update Stock', 'description': 'Adjust stock quantities'},
            {'key': 'inventory:transfer', 'name': 'Transfer Stock', 'description': 'Transfer stock between locations'},
        ],
    },
    {
        'category': 'Reports',
        'description': 'Business reports and insights',
        'permissions': [
            {'key': 'reports:read', 'name': 'View Reports', 'description': 'Access sales and business reports'},
            {'key': 'reports:export', 'name': 'Export Reports', 'description': 'Download reports as files'},
        ],
    },
    {
        'category': 'Analytics',
        'description': 'Store analytics and dashboards',
        'permissions': [
            {'key': 'analytics:read', 'name': 'View Analytics', 'description': 'Access analytics dashboards'},
        ],
    },
    {
        'category': 'Content',
        'description': 'Store content management',
        'permissions': [
            {'key': 'content:read', 'name': 'View Content', 'description': 'View store content and pages'},
            {'key': 'content:create', 'name': 'Create Content', 'description': 'Add new content'},
            {'key': 'content:update', 'name': 'Edit Content', 'description': 'Modify existing content'},
            {'key': 'content:delete', 'name': 'Delete Content', 'description': 'Remove content'},
        ],
    },
    {
        'category': 'Marketing',
        'description': 'Marketing and promotions',
        'permissions': [
            {'key': 'marketing:read', 'name': 'View Marketing', 'description': 'View marketing campaigns'},
            {'key': 'marketing:create', 'name': 'Create Campaigns', 'description': 'Create marketing campaigns'},
            {'key': 'marketing:update', 'name': 'Edit Campaigns', 'description': 'Modify campaigns'},
            {'key': 'marketing:delete', 'name': 'Delete Campaigns', 'description': 'Remove campaigns'},
        ],
    },
    {
        'category': 'Support',
        'description': 'Customer support and tickets',
        'permissions': [
            {'key': 'support:read', 'name': 'View Support Tickets', 'description': 'View customer support tickets'},
            {'key': 'support:create', 'name': 'Create Tickets', 'description': 'Create support tickets'},
            {'key': 'support:update', 'name': 'Handle Tickets', 'description': 'Respond to and update tickets'},
            {'key': 'support:close', 'name': 'Close Tickets', 'description': 'Close resolved tickets'},
        ],
    },
    {
        'category': 'Settings',
        'description': 'Store configuration',
        'permissions': [
            {'key': 'settings:read', 'name': 'View Settings', 'description': 'View store settings'},
            {'key': 'settings:update', 'name': 'Edit Settings', 'description': 'Modify store settings'},
        ],
    },
    {
        'category': 'Deliveries',
        'description': 'Delivery management',
        'permissions': [
            {'key': 'deliveries:read', 'name': 'View Deliveries', 'description': 'View delivery assignments'},
            {'key': 'deliveries:update', 'name': 'Update Deliveries', 'description': 'Update delivery status'},
            {'key': 'deliveries:assign', 'name': 'Assign Deliveries', 'description': 'Assign deliveries to drivers'},
        ],
    },
]

RESTRICTED_PERMISSIONS = [
    # Store management
    'stores:*',
    'stores:create',
    'stores:delete',
    'stores:settings:delete',
    # Staff management
    'staff:delete',
    'staff:manage:all',
    # Role management
    'roles:*',
    'roles:create',
    'roles:delete',
    # Billing
    'billing:*',
    'billing:manage',
    'subscriptions:*',
    # Organization level
    'org:*',
    'org:delete',
    # Platform level
    'platform:*',
    'users:*',
]

SUGGESTED_ROLE_TEMPLATES = {
    'Product Manager': [
        'products:read', 'products:create', 'products:update',
        'categories:read', 'categories:create', 'categories:update',
        'brands:read', 'brands:create', 'brands:update',
        'inventory:read', 'inventory:update',
    ],
    'Order Processor': [
        'orders:read', 'orders:update',
        'customers:read',
        'products:read',
        'deliveries:read', 'deliveries:update',
    ],
    'Customer Support': [
        'customers:read', 'customers:update',
        'orders:read', 'orders:update',
        'support:read', 'support:create', 'support:update', 'support:close',
        'products:read',
    ],
    'Content Editor': [
        'products:read', 'products:update',
        'content:read', 'content:create', 'content:update',
        'categories:read',
        'brands:read',
    ],
    'Analytics Viewer': [
        'analytics:read',
        'reports:read', 'reports:export',
        'products:read',
        'orders:read',
        'customers:read',
    ],
    'Delivery Manager': [
        'deliveries:read', 'deliveries:update', 'deliveries:assign',
        'orders:read', 'orders:update',
        'customers:read',
    ],
}


def get_all_permission_keys():
    return [
        permission['key']
        for category in AVAILABLE_PERMISSIONS
        for permission in category['permissions']
    ]


def is_restricted(permission):
    for restricted in RESTRICTED_PERMISSIONS:
        if restricted.endswith(':*'):
            if permission.startswith(restricted[:-2] + ':'):
                return True
        elif permission == restricted:
            return True
    return False


def is_permission_allowed(permission):
    return permission in get_all_permission_keys() and not is_restricted(permission)


def validate_permissions(permissions):
    """
    Check every requested key against the catalog.

    Returns a ``(valid, errors, invalid_permissions)`` tuple. Keys missing
    from the catalog are reported before the restriction check.
    """
    errors = []
    invalid_permissions = []
    allowed_keys = set(get_all_permission_keys())

    for permission in permissions:
        if permission not in allowed_keys:
            errors.append(f'Permission "{permission}" is not available for custom roles')
            invalid_permissions.append(permission)
            continue

        if is_restricted(permission):
            errors.append(f'Permission "{permission}" is restricted and cannot be assigned to custom roles')
            invalid_permissions.append(permission)

    return len(errors) == 0, errors, invalid_permissions


def get_permission_by_key(key):
    for category in AVAILABLE_PERMISSIONS:
        for permission in category['permissions']:
            if permission['key'] == key:
                return permission
    return None


def get_permission_category(key):
    for category in AVAILABLE_PERMISSIONS:
        if any(permission['key'] == key for permission in category['permissions']):
            return category['category']
    return None


def format_permissions_for_display(permissions):
    """Group known permission keys by catalog category, keeping request order."""
    grouped = {}
    for key in permissions:
        permission = get_permission_by_key(key)
        category = get_permission_category(key)
        if permission and category:
            grouped.setdefault(category, []).append(permission)

    return [
        {'category': category, 'permissions': perms}
        for category, perms in grouped.items()
    ]


def get_permissions_by_category():
    return {
        category['category']: [
            {
                'key': permission['key'],
                'label': permission['name'],
                'description': permission['description'],
            }
            for permission in category['permissions']
        ]
        for category in AVAILABLE_PERMISSIONS
    }


def custom_role_has_permission(role_permissions, required_permission):
    if required_permission in role_permissions:
        return True

    resource = required_permission.split(':')[0]
    return f'{resource}:*' in role_permissions
