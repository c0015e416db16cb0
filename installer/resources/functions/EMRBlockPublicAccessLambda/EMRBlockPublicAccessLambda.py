######################################################################################################################
#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.                                                #
#                                                                                                                    #
#  Licensed under the Apache License, Version 2.0 (the "License"). You may not use this file except in compliance    #
#  with the License. A copy of the License is located at                                                             #
#                                                                                                                    #
#      http://www.apache.org/licenses/LICENSE-2.0                                                                    #
#                                                                                                                    #
#  or in the 'license' file accompanying this file. This file is distributed on an 'AS IS' BASIS, WITHOUT WARRANTIES #
#  OR CONDITIONS OF ANY KIND, express or implied. See the License for the specific language governing permissions    #
#  and limitations under the License.                                                                                #
######################################################################################################################

"""
Custom::EMRConfigureBlockPublicAccess handler.
Enables EMR Block Public Access with exceptions for ports 22, 80 and 443. Without it, the EMR cluster
fails to deploy because the HTTP ingress security group allows 80 and 443 from 0.0.0.0/0.
"""

from emr_course.custom_resources.block_public_access import AccessGuardReconciler
from emr_course.utils.aws.boto3_wrapper import get_boto
from emr_course.utils.logger import EmrLogger

logger = EmrLogger().stdout_handler()

# Region -> get_boto response, built on first invocation and re-used by the following ones of this Lambda process.
# A failed initialization is cached as well: every later request for that region is answered FAILED
_emr_clients = {}


def get_emr_client(region_name=None):
    if region_name not in _emr_clients:
        _emr_clients[region_name] = get_boto(service_name="emr", region_name=region_name)
    return _emr_clients[region_name]


def lambda_handler(event, context):
    _region = None
    if isinstance(event, dict) and isinstance(event.get("ResourceProperties"), dict):
        _region = event["ResourceProperties"].get("Region")

    reconciler = AccessGuardReconciler(emr_client=get_emr_client(region_name=_region))
    return reconciler.handle(event=event, context=context).as_dict()
