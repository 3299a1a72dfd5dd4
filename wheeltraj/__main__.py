from wheeltraj.main import main

raise SystemExit(main())
