# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

import sys
from .base import *

RUNNING_PYTEST = 'pytest' in sys.modules or any('pytest' in arg for arg in sys.argv)

if RUNNING_PYTEST:
    from .test import *
elif os.environ.get('env') == 'prod':
    from .prod import *
else:
    from .dev_sample import *
