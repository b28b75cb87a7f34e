ROLE_LEVELS = {
    'PLATFORM': 4,
    'ORGANIZATION': 3,
    'STORE': 2,
    'CUSTOMER': 1,
}

PLATFORM_ROLES = ['SUPER_ADMIN']

ORGANIZATION_ROLES = ['OWNER', 'ADMIN', 'MEMBER', 'VIEWER']

STORE_ROLES = [
    'STORE_ADMIN',
    'SALES_MANAGER',
    'INVENTORY_MANAGER',
    'CUSTOMER_SERVICE',
    'CONTENT_MANAGER',
    'MARKETING_MANAGER',
    'DELIVERY_BOY',
]

CUSTOMER_ROLES = ['CUSTOMER']

ROLE_HIERARCHY = {
    **{role: ROLE_LEVELS['PLATFORM'] for role in PLATFORM_ROLES},
    **{role: ROLE_LEVELS['ORGANIZATION'] for role in ORGANIZATION_ROLES},
    **{role: ROLE_LEVELS['STORE'] for role in STORE_ROLES},
    **{role: ROLE_LEVELS['CUSTOMER'] for role in CUSTOMER_ROLES},
}

# Precedence when a user holds several memberships or staff rows
MEMBERSHIP_PRIORITY = {
    'OWNER': 4,
    'ADMIN': 3,
    'MEMBER': 2,
    'VIEWER': 1,
}

STAFF_PRIORITY = {
    'STORE_ADMIN': 4,
    'SALES_MANAGER': 3,
    'INVENTORY_MANAGER': 2,
    'CUSTOMER_SERVICE': 1,
}

ROLE_PERMISSIONS = {
    'SUPER_ADMIN': ['*'],

    'OWNER': [
        'org:*', 'organization:*',
        'stores:*', 'store:*',
        'users:*', 'roles:*',
        'billing:*', 'settings:*', 'subscriptions:*',
        'webhooks:*', 'integrations:*',
        'products:*', 'categories:*', 'brands:*', 'attributes:*',
        'inventory:*', 'orders:*', 'customers:*', 'reviews:*',
        'reports:*', 'analytics:*', 'staff:*',
        'content:*', 'marketing:*', 'coupons:*', 'support:*',
    ],
    'ADMIN': [
        'org:read', 'org:update', 'organization:read', 'organization:update',
        'stores:*', 'store:*',
        'users:read', 'users:invite',
        'settings:read', 'settings:update', 'subscriptions:read',
        'products:*', 'categories:*', 'brands:*', 'attributes:*',
        'inventory:*', 'orders:*', 'customers:*', 'reviews:*',
        'reports:*', 'analytics:*',
        'staff:read', 'staff:create', 'staff:update',
        'content:*', 'marketing:*', 'coupons:*', 'support:*',
    ],
    'MEMBER': [
        'org:read', 'stores:read',
        'products:read', 'categories:read', 'brands:read',
        'orders:read', 'customers:read', 'reports:read',
    ],
    'VIEWER': [
        'org:read', 'stores:read',
        'products:read', 'categories:read', 'brands:read',
    ],

    'STORE_ADMIN': [
        'store:read', 'store:update', 'stores:read',
        'products:*', 'categories:*', 'brands:*', 'attributes:*',
        'inventory:*', 'orders:*', 'customers:*', 'reviews:*',
        'reports:*', 'analytics:*', 'staff:*',
        'content:*', 'marketing:*', 'coupons:*', 'support:*',
        'settings:read', 'settings:update', 'subscriptions:read',
        'webhooks:*', 'integrations:*',
    ],
    'SALES_MANAGER': [
        'products:read', 'products:update',
        'categories:read', 'brands:read',
        'orders:*',
        'customers:read', 'customers:update', 'customers:create',
        'reports:read', 'analytics:read',
        'support:read', 'support:create', 'support:update',
    ],
    'INVENTORY_MANAGER': [
        'products:*', 'categories:*', 'brands:*', 'inventory:*',
        'reports:read', 'analytics:read', 'orders:read',
    ],
    'CUSTOMER_SERVICE': [
        'orders:read', 'orders:update',
        'customers:*', 'products:read', 'support:*', 'reports:read',
    ],
    'CONTENT_MANAGER': [
        'products:read', 'products:update', 'products:create',
        'categories:*', 'brands:*', 'content:*',
        'marketing:read', 'marketing:create', 'marketing:update',
    ],
    'MARKETING_MANAGER': [
        'products:read', 'customers:read',
        'marketing:*', 'campaigns:*', 'analytics:*',
        'reports:read', 'content:read', 'content:create', 'content:update',
    ],
    'DELIVERY_BOY': [
        'deliveries:read', 'deliveries:update',
        'orders:read', 'customers:read',
    ],

    'CUSTOMER': [
        'products:read', 'categories:read', 'brands:read',
        'orders:create', 'orders:read:own', 'orders:update:own',
        'profile:*:own', 'wishlist:*:own',
        'reviews:create', 'reviews:read', 'reviews:update:own', 'reviews:delete:own',
        'support:create', 'support:read:own',
    ],
}

ROLE_DESCRIPTIONS = {
    'SUPER_ADMIN': 'Platform administrator with full access to all features',
    'OWNER': 'Organization owner with full control over the organization',
    'ADMIN': 'Organization administrator with management access',
    'MEMBER': 'Organization member with basic access',
    'VIEWER': 'Organization viewer with read-only access',
    'STORE_ADMIN': 'Store administrator with full control over the store',
    'SALES_MANAGER': 'Manages sales, orders, and customer relationships',
    'INVENTORY_MANAGER': 'Manages products, inventory, and stock',
    'CUSTOMER_SERVICE': 'Handles customer support and service',
    'CONTENT_MANAGER': 'Manages product content and categories',
    'MARKETING_MANAGER': 'Manages marketing campaigns and analytics',
    'DELIVERY_BOY': 'Manages deliveries and order fulfillment',
    'CUSTOMER': 'End customer with shopping access',
}

# Custom role request lifecycle
REQUEST_STATUS_PENDING = 'PENDING'
REQUEST_STATUS_APPROVED = 'APPROVED'
REQUEST_STATUS_REJECTED = 'REJECTED'
REQUEST_STATUS_CANCELLED = 'CANCELLED'
REQUEST_STATUS_INFO_REQUESTED = 'INFO_REQUESTED'

OPEN_REQUEST_STATUSES = [REQUEST_STATUS_PENDING, REQUEST_STATUS_INFO_REQUESTED]

REQUEST_STATUSES = [
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_REJECTED,
    REQUEST_STATUS_CANCELLED,
    REQUEST_STATUS_INFO_REQUESTED,
]

CUSTOM_ROLE_ACTIVITY_ACTIONS = [
    'ROLE_CREATED',
    'ROLE_UPDATED',
    'PERMISSIONS_CHANGED',
    'ROLE_DEACTIVATED',
    'ROLE_REACTIVATED',
    'ROLE_ASSIGNED',
    'ROLE_UNASSIGNED',
    'ROLE_DELETED',
    'LIMIT_CHANGED',
]

SUBSCRIPTION_PLANS = ['FREE', 'BASIC', 'PRO', 'ENTERPRISE']

DEFAULT_PLAN_LIMITS = {
    'FREE': 3,
    'BASIC': 5,
    'PRO': 10,
    'ENTERPRISE': 20,
}

ROLE_NAME_PATTERN = r'^[a-zA-Z0-9\s\-_]+$'
