"""Runtime modules shipped with the vehicle tracker."""
