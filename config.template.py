"""
Configuration template for the RethinkDB benchmark backend.

INSTRUCTIONS:
1. Copy this file to config.py: cp config.template.py config.py
2. Edit config.py with your actual values
3. DO NOT commit config.py

Any key left out here falls back to the RETHINKDB_* environment
variables (a local .env is loaded), then to the built-in defaults.
"""

# =============================================================================
# RethinkDB Configuration
# =============================================================================

RETHINKDB_CONFIG = {
    # Comma-separated list; backend instances are spread round-robin
    'rethinkdb.host': 'localhost',
    'rethinkdb.port': 28015,

    # Database and table created on first use
    'rethinkdb.database': 'ycsb',
    'rethinkdb.table': 'usertable',

    # hard: fsync before acknowledging writes, soft: acknowledge first
    'rethinkdb.durability': 'hard',

    # Optional per-read override: single, majority or outdated
    # 'rethinkdb.read_consistency': 'majority',

    # Connect timeout (seconds)
    'rethinkdb.timeout': 20,
}

# =============================================================================
# Smoke Check Configuration
# =============================================================================

SMOKE_CONFIG = {
    # Records inserted, read, updated, scanned and deleted by verify_setup.py
    'num_records': 10,

    # Fields per record (YCSB standard: 10)
    'field_count': 10,

    # Key prefix, keeps smoke records apart from benchmark data
    'key_prefix': 'verify_',
}

# =============================================================================
# Helper Functions (DO NOT MODIFY)
# =============================================================================

def validate_config():
    """Validate that config values are usable"""
    issues = []

    if not str(RETHINKDB_CONFIG.get('rethinkdb.host', '')).strip():
        issues.append("RethinkDB host not configured")

    if RETHINKDB_CONFIG.get('rethinkdb.durability') not in ('hard', 'soft'):
        issues.append("Durability must be 'hard' or 'soft'")

    mode = RETHINKDB_CONFIG.get('rethinkdb.read_consistency')
    if mode is not None and mode not in ('single', 'majority', 'outdated'):
        issues.append("Read consistency must be 'single', 'majority' or 'outdated'")

    if SMOKE_CONFIG['num_records'] < 1:
        issues.append("Smoke check needs at least one record")

    if issues:
        print("⚠️  Configuration issues found:")
        for issue in issues:
            print(f"   - {issue}")
        print("\n💡 Edit config.py to fix these issues")
        return False

    return True

def print_config():
    """Print current configuration"""
    print("=" * 80)
    print("CURRENT CONFIGURATION")
    print("=" * 80)

    print("\n🔧 RethinkDB:")
    for key, value in RETHINKDB_CONFIG.items():
        print(f"   {key}: {value}")

    print("\n📊 Smoke check:")
    for key, value in SMOKE_CONFIG.items():
        print(f"   {key}: {value}")

    print("\n" + "=" * 80)

if __name__ == '__main__':
    # Run validation when config.py is executed directly
    print_config()
    print()
    if validate_config():
        print("✅ Configuration is valid!")
    else:
        print("❌ Please fix configuration issues above")
