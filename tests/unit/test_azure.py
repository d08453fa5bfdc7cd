"""Unit tests for the Azure credential provider."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from aks_deployer.azure import AzCliManagedClustersService, kubernetes_service_rid
from aks_deployer.errors import CredentialsError
from tests.mocks import KUBECONFIG_BLOB


class TestAzCliManagedClustersService:
    """Tests for AzCliManagedClustersService."""

    def test_get_credentials(self):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=KUBECONFIG_BLOB, stderr="")
            creds = AzCliManagedClustersService().get_user_credentials("sub", "rg-todo", "aks-todo")

        assert creds.kubeconfigs == [KUBECONFIG_BLOB.strip()]
        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["az", "aks", "get-credentials"]
        assert cmd[cmd.index("--name") + 1] == "aks-todo"
        assert cmd[cmd.index("--file") + 1] == "-"
        assert "--admin" not in cmd

    def test_admin_credentials(self):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=KUBECONFIG_BLOB, stderr="")
            AzCliManagedClustersService(admin=True).get_user_credentials("sub", "rg", "aks")

        assert "--admin" in mock_run.call_args[0][0]

    def test_empty_output(self):
        """Test an empty response yields no kubeconfigs."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="\n", stderr="")
            creds = AzCliManagedClustersService().get_user_credentials("sub", "rg", "aks")

        assert creds.kubeconfigs == []

    def test_failure(self):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="ERROR: (ResourceNotFound)\n")
            with pytest.raises(CredentialsError, match="ResourceNotFound"):
                AzCliManagedClustersService().get_user_credentials("sub", "rg", "aks")

    def test_az_missing(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("az")):
            with pytest.raises(CredentialsError) as exc_info:
                AzCliManagedClustersService().get_user_credentials("sub", "rg", "aks")

        assert exc_info.value.hint.startswith("Install the Azure CLI")


def test_kubernetes_service_rid():
    assert kubernetes_service_rid("sub-1", "rg-todo", "aks-todo") == (
        "/subscriptions/sub-1/resourceGroups/rg-todo/providers/Microsoft.ContainerService/managedClusters/aks-todo"
    )
